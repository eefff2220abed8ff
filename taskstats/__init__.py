"""Task statistics service layer: records, periods, aggregation and stores."""

__version__ = "0.1.0"
