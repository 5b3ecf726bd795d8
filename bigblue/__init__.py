"""Big Blue hand controller: drive and spiral-search a rover over a paired serial radio link."""

__version__ = "1.0.0"
