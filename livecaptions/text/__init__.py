"""Text subsystem - line wrapping and numeral/script conversion."""
from livecaptions.text.LineWrapper import wrap_text
from livecaptions.text.ScriptConverter import ConversionMode, normalize

__all__ = ['wrap_text', 'ConversionMode', 'normalize']
