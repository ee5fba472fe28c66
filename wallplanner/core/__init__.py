from .state import *
from .app import App, Screen, warn, scale_px, COLOR_BG_SCREEN, COLOR_BG_DARK, COLOR_BG_LIGHT, COLOR_BG_CANVAS, COLOR_TEXT
