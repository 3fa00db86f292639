from .fake import FakeDecoderState, FakeEncoderDecoder

__all__ = ["FakeDecoderState", "FakeEncoderDecoder"]
