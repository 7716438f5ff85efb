"""Display subsystem - sinks that receive caption windows."""
from livecaptions.display.ConsoleDisplaySink import ConsoleDisplaySink
from livecaptions.display.WsDisplaySink import WsDisplaySink
from livecaptions.display.DisplayServer import DisplayServer, RoutedDisplaySink

__all__ = ['ConsoleDisplaySink', 'WsDisplaySink', 'DisplayServer', 'RoutedDisplaySink']
