"""Read Game Boy cartridges through an insideGadgets GBxCart USB reader."""

__version__ = "0.1.0"
