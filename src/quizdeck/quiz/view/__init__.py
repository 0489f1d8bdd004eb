from .app import QuizApp, build_view, run_app

__all__ = ["QuizApp", "build_view", "run_app"]
