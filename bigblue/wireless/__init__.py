"""Radio link: wire protocol, serial transport and connection lifecycle."""
