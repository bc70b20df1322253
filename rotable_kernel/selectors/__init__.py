"""Read-only selectors for the rotable kernel."""

from rotable_kernel.selectors.component_selector import ComponentSelector, DashboardStats

__all__ = ["ComponentSelector", "DashboardStats"]
