"""NSGA-II search over payload instruction groups, with problems and history."""