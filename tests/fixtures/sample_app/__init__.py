"""User management sample application wired by cqrsgen."""
