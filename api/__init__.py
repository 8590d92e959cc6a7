"""HTTP front end for the budget tracker."""
