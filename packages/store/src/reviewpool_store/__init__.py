"""Directory store contract and backends for reviewpool."""
