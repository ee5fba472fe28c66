from .planner import PlannerScreen
