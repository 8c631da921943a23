"""Feed transports."""
