"""Idiom subsystem - dictionary loading and saying detection."""
from livecaptions.idioms.IdiomDictionary import build_dictionary, load_dictionary
from livecaptions.idioms.IdiomMatcher import IdiomMatcher, find_match

__all__ = ['build_dictionary', 'load_dictionary', 'IdiomMatcher', 'find_match']
