"""Partner pairing use cases."""
