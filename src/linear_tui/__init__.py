"""linear-tui agent core: run coding-agent CLIs against an issue and stream their output."""

__version__ = "0.1.0"
