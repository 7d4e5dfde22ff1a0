"""Transport used by task bodies to reach their targets."""
