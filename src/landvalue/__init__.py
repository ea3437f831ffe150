"""landvalue: location-aware land listing and valuation client.

Acquires the device position, fetches nearby land listings from the
backend, derives filtered and sorted views of them, and requests parcel
valuations.
"""

__version__ = "0.1.0"
