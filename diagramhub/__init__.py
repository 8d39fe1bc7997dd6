"""diagramhub: versioned diagram documents with sharing and pluggable file storage."""

__version__ = "0.1.0"
