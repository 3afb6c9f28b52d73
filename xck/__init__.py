"""XML-to-CSV kit: XPath driven extraction and flattening of XML documents into CSV files."""

__version__ = "0.1.0"
