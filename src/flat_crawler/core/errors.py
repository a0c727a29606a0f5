"""Error kinds raised by the decoding engine."""


class FlatCrawlerError(Exception):
    """Base class for every decoding failure."""


class IndexOutOfRangeError(FlatCrawlerError, IndexError):
    """A field or entry index exceeds the node's declared count."""


class FieldAbsentError(FlatCrawlerError, LookupError):
    """The vtable slot is 0: the writer never stored the field."""


class MalformedLayoutError(FlatCrawlerError, ValueError):
    """Inconsistent vtable arithmetic, short header, or an offset outside the buffer."""


class UnknownUnionTagError(FlatCrawlerError, LookupError):
    """A union discriminant has no mapped payload kind."""


class DecodeMismatchError(FlatCrawlerError, ValueError):
    """The declared type does not fit the bytes, or cannot be decoded at all."""
