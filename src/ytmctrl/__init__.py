"""ytmctrl: mirror and control a remote YouTube Music desktop player."""

__version__ = "0.1.0"
