class LabelScanError(Exception):
    """Base class for errors raised by labelscan."""


class ProductNotFound(LabelScanError):
    def __init__(self, barcode: str):
        super().__init__(f"Product {barcode} not found")
        self.barcode = barcode


class ProductLookupError(LabelScanError):
    """The product database could not be reached or returned garbage."""
