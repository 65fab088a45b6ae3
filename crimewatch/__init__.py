"""CrimeWatch - crime incident reporting and triage API."""
