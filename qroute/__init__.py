"""QRoute - tabular Q-learning over small state graphs with greedy route reconstruction.

This package trains state-to-state action values on a directed graph and follows
the learned values from a start node to a goal node, skipping obstacle nodes.
"""

__version__ = "1.0.0"
__author__ = "QRoute Demo"
