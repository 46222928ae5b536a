"""Runtime configuration: ledger keys, storage, security and notice timing."""
