# livecaptions/__init__.py
from .TranscriptBuffer import TranscriptBuffer, CaptionGeometry
from .ThrottleGate import ThrottleGate
from .CaptionSession import CaptionSession
from .CaptionSettings import CaptionSettings
from .SessionRegistry import SessionRegistry

__all__ = [
    'TranscriptBuffer',
    'CaptionGeometry',
    'ThrottleGate',
    'CaptionSession',
    'CaptionSettings',
    'SessionRegistry'
]
