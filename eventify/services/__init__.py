"""Domain services: event store, registration ledger, offline mirror."""
