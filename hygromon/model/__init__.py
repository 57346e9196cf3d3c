from .reading import Reading
from .frame import FrameDecodeError, IncompleteFrameError, decode_frame
from .sensor import SensorProfile
from .transport import TransportType
from .loader import MetadataLoader

__all__ = ["Reading",
           "FrameDecodeError",
           "IncompleteFrameError",
           "decode_frame",
           "SensorProfile",
           "TransportType",
           "MetadataLoader"]
