"""Provisioning services for resolved buckets."""

from .plan import PlannedCall, build_plan, render_plan

__all__ = ["PlannedCall", "build_plan", "render_plan"]
