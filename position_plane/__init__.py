"""Position plane: live trade/order snapshots and the host broker adapter."""
