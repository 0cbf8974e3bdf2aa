"""Circle membership and invite use cases."""
