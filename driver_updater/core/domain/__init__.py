"""L1 Domain — pure version, eligibility and planning logic."""
