"""Service layer: credentials, sessions, access policy, notifications and the mutation orchestrator."""
