"""Journal entry use cases."""
