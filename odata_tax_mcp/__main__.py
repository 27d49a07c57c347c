"""Allow ``python -m odata_tax_mcp``."""

from odata_tax_mcp.server import main

if __name__ == "__main__":
    main()
