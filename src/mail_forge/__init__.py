"""Build static, localized HTML emails from templates, stylesheets and translations."""

__version__ = "0.1.0"
