from .core import App, Screen, APP_TITLE
from .screens import PlannerScreen
