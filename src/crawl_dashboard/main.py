import asyncio
import signal
import sys

from loguru import logger
from PySide6.QtWidgets import QApplication, QMessageBox
from qasync import QEventLoop

from crawl_dashboard import bootstrap
from crawl_dashboard.application.queries import JobListQuery
from crawl_dashboard.infrastructure.config import settings
from crawl_dashboard.infrastructure.logging_utils import configure_logging, log_step
from crawl_dashboard.infrastructure.preferences import load_preferences
from crawl_dashboard.presentation.main_window import MainWindow

settings.ensure_data_dir()
configure_logging(settings.log_path)


def report_unhandled_exception(exc_type, exc_value, exc_traceback):
    """처리되지 않은 예외를 로그에 남기고 사용자에게 로그 위치를 알려줍니다."""
    logger.opt(exception=(exc_type, exc_value, exc_traceback)).error(
        "Unhandled exception"
    )
    QMessageBox.warning(
        None,
        "오류",
        f"예상치 못한 오류가 발생했습니다.\n로그 파일: {settings.log_path}",
    )


def install_shutdown_signals(shutdown_event: asyncio.Event) -> None:
    """SIGINT/SIGTERM을 받으면 화면을 닫을 때와 같은 종료 경로를 탑니다 (Windows 제외)."""
    if sys.platform == "win32":
        return
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)


async def run_dashboard(app: QApplication):
    logger.info(f"Crawl dashboard starting against {settings.api_base_url}")
    shutdown_event = asyncio.Event()
    install_shutdown_signals(shutdown_event)

    preferences = load_preferences(
        settings.preferences_path, default_interval=settings.poll_interval
    )

    window: MainWindow | None = None

    def on_polling_change(event):
        if window is not None:
            window.on_polling_changed(event)

    with log_step("Bootstrapping dashboard", base_url=settings.api_base_url):
        application = bootstrap.bootstrap(
            settings,
            poll_interval=preferences.poll_interval,
            on_polling_change=on_polling_change,
        )

    try:
        window = MainWindow(
            application=application,
            preferences=preferences,
            preferences_path=settings.preferences_path,
            initial_query=JobListQuery.initial(limit=settings.page_size),
            shutdown_event=shutdown_event,
        )
        window.show()
        await window.refresh()
        await shutdown_event.wait()
    finally:
        with log_step("Releasing dashboard resources"):
            await application.aclose()
        app.quit()


def main():
    sys.excepthook = report_unhandled_exception
    app = QApplication(sys.argv)
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    try:
        with loop:
            loop.run_until_complete(run_dashboard(app))
    except KeyboardInterrupt:
        logger.info("Interrupted. Exiting.")


if __name__ == "__main__":
    main()
