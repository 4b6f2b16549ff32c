"""Talk check-in service with an RFID card-scan bridge."""

__version__ = "1.0.0"
