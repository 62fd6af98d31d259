"""Job records, list filters and an in-memory job store."""