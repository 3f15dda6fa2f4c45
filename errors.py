class HuffmanError(Exception):
    """Base class for every error raised by the codec."""


class InputNotFound(HuffmanError, FileNotFoundError):
    pass


class EmptyInput(HuffmanError, ValueError):
    pass


class UnknownSymbol(HuffmanError, LookupError):
    # table and buffer were not derived from the same data
    def __init__(self, symbol):
        super().__init__(f"no code for symbol {symbol}")
        self.symbol = symbol


class FormatError(HuffmanError, ValueError):
    """Compressed input is structurally invalid."""


class MalformedTree(FormatError):
    pass


class TruncatedPayload(FormatError):
    pass


class MalformedPayload(FormatError):
    pass
