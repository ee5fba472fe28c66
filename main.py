import logging
from wallplanner import App, PlannerScreen, APP_TITLE
from wallplanner.core import SETTINGS_PATH, ENV_PATH, load_settings, save_settings, load_env_overrides

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="[%(asctime)s %(name)s] [%(levelname)s] %(message)s")
    logging.getLogger("PIL").setLevel(logging.WARNING)
    if not load_settings(SETTINGS_PATH):
        save_settings(SETTINGS_PATH)
    load_env_overrides(ENV_PATH)
    app = App(title=APP_TITLE)
    app.show_screen(PlannerScreen)
    app.mainloop()
