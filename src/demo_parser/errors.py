class DemoParserError(Exception):
    """Base class for everything raised while reading a demo."""

class DecodeError(DemoParserError):
    """A single record could not be decoded. The session can carry on."""

class MalformedVarintError(DecodeError):
    pass

class FrameOverrunError(DecodeError):
    pass

class BitstreamOverrunError(DecodeError, EOFError):
    pass

class DecompressError(DecodeError):
    pass

class MessageDecodeError(DecodeError):
    pass

class StalePayloadError(DemoParserError):
    """A record payload was read after the scratch buffer was reused."""

class FatalStreamError(DemoParserError):
    """The whole session has to stop."""

class InvalidHeaderError(FatalStreamError):
    pass

class BufferAllocationError(FatalStreamError, MemoryError):
    pass
