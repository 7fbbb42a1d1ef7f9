from governor.workers.tasks.points_maintenance import run_points_expiry_cleanup

__all__ = ["run_points_expiry_cleanup"]
