"""Command-line front end for the budget tracker."""
