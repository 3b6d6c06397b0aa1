"""Account plane: copy-trading relationships and the account hierarchy."""
