"""netbundle: resolve and fetch modules across URLs, files and built-ins."""

__version__ = "0.1.0"
