"""Small, dependency-free helpers shared by the codec and adapters."""
