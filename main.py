"""
Focus Console - Entry Point

Supports command-line flags:
  python main.py                                   # GUI mode
  python main.py --replay D:/frames                # GUI, replay a folder immediately
  python main.py --evaluate a.png b.png            # Headless report
  python main.py --evaluate *.png --roi 10,10,200,150 --json
"""
import sys
import os
import argparse

# Add project root to path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

from app_config import APP_DISPLAY_NAME, APP_SUBTITLE
from services.focus import Roi
from version import __version__


def parse_roi_arg(text):
    """argparse type for X,Y,W,H"""
    try:
        return Roi.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    parser = argparse.ArgumentParser(
        prog='focus-console',
        description=f'{APP_DISPLAY_NAME} - {APP_SUBTITLE}',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python main.py                                   # Normal GUI mode
  python main.py --replay D:/frames                # Replay a folder as a live stream
  python main.py --evaluate a.png b.png            # Score files in sweep order
  python main.py --evaluate a.png --roi 10,10,200,150 --json
        """)

    parser.add_argument('--evaluate', nargs='+', metavar='PATH',
                        help='Evaluate image files without a GUI and print the results')
    parser.add_argument('--roi', type=parse_roi_arg, metavar='X,Y,W,H',
                        help='Region to evaluate (headless mode; default full frame)')
    parser.add_argument('--json', action='store_true',
                        help='Print headless results as JSON')
    parser.add_argument('--replay', metavar='DIR',
                        help='Start replaying image files from DIR on launch')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv=None):
    """Launch Focus Console"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.roi or args.json) and not args.evaluate:
        parser.error("--roi and --json require --evaluate")

    # Headless mode - no GUI at all
    if args.evaluate:
        from services.logger import app_logger
        from services.headless_runner import run_headless
        if args.json:
            # Keep stdout clean for the JSON document
            app_logger.echo = False
        success = run_headless(args.evaluate, roi=args.roi, as_json=args.json)
        return 0 if success else 1

    from PySide6.QtWidgets import QApplication
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtGui import QFont

    from ui.main_window import MainWindow
    from services.logger import app_logger

    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_DISPLAY_NAME)
    app.setApplicationVersion(__version__)
    app.setFont(QFont("Segoe UI", 10))

    app_logger.info(f"Starting {APP_DISPLAY_NAME} v{__version__}")

    window = MainWindow(replay_directory=args.replay)
    window.show()

    if args.replay:
        # Delay start to allow UI to initialize
        QTimer.singleShot(500, window.start_capture)

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
