import pytest
from io import StringIO
from unittest.mock import patch
from ubigen import __version__
from ubigen.logger import UbigenLogger, log, TemplateLogger
from ubigen.cmds import version


# Custom logger that implements all methods
class CustomLogger(TemplateLogger):
    def print(self, *args, **kwargs):
        kwargs.pop("file", None)
        print("Custom logger:", *args, **kwargs)

    def note(self, message: str):
        pass

    def warning(self, message: str):
        pass

    def error(self, message: str):
        pass

    def progress_bar(
        self,
        cur_iter: int,
        total_iters: int,
        prefix: str = "",
        suffix: str = "",
        bar_length: int = 30,
    ):
        pass

    def set_verbosity(self, verbosity: str):
        pass


@pytest.mark.host_test
class TestLogger:
    @pytest.fixture
    def logger(self):
        log = UbigenLogger()
        log.set_verbosity("compact")
        yield log
        log.__class__ = UbigenLogger
        log.set_verbosity("verbose")

    def test_singleton(self, logger):
        logger2 = UbigenLogger()
        assert logger is logger2
        assert logger is log

    def test_print(self, logger):
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.print("With newline")
            logger.print("Without newline", end="")
            assert fake_err.getvalue() == "With newline\nWithout newline"

    def test_print_to_stdout(self, logger):
        with patch("sys.stdout", new=StringIO()) as fake_out:
            logger.print("Image info", file=fake_out)
            assert fake_out.getvalue() == "Image info\n"

    def test_note_message(self, logger):
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.note("This is a note")
            assert (
                fake_err.getvalue()
                == f"{logger.ansi_blue}Note:{logger.ansi_normal} This is a note\n"
            )

    def test_warning_message(self, logger):
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.warning("This is a warning")
            assert logger.ansi_yellow == "\033[0;33m"
            assert (
                fake_err.getvalue()
                == f"{logger.ansi_yellow}Warning:{logger.ansi_normal} "
                "This is a warning\n"
            )

    def test_error_message(self, logger):
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.error("This is an error")
            assert (
                fake_err.getvalue()
                == f"{logger.ansi_red}This is an error{logger.ansi_normal}\n"
            )

    def test_silent(self, logger):
        logger.set_verbosity("silent")
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.print("Hidden")
            logger.warning("Hidden too")
            logger.error("Shown")
            assert (
                fake_err.getvalue() == f"{logger.ansi_red}Shown{logger.ansi_normal}\n"
            )

    def test_invalid_verbosity(self, logger):
        with pytest.raises(ValueError, match="Invalid verbosity level"):
            logger.set_verbosity("loud")

    def test_no_color(self, logger, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        logger.set_verbosity("auto")
        assert logger.ansi_red == ""

    def test_progress_bar(self, logger):
        logger.set_verbosity("verbose")
        with patch("sys.stderr", new=StringIO()) as fake_err:
            logger.progress_bar(
                cur_iter=2,
                total_iters=4,
                prefix="Progress: ",
                suffix=" (2/4)",
                bar_length=10,
            )
            logger.progress_bar(
                cur_iter=4,
                total_iters=4,
                prefix="Progress: ",
                suffix=" (4/4)",
                bar_length=10,
            )
            output = fake_err.getvalue()
            assert "Progress: [====>     ]  50.0% (2/4)" in output
            assert "Progress: [==========] 100.0% (4/4) \n" in output

    def test_set_logger(self, logger):
        # Original logger
        with patch("sys.stdout", new=StringIO()) as fake_out:
            version()  # This will log.print the ubigen version
            output = fake_out.getvalue()
            assert output == f"{__version__}\n"

        # Replace logger with custom one
        with patch("sys.stdout", new=StringIO()) as fake_out:
            logger.set_logger(CustomLogger())
            assert isinstance(logger, CustomLogger)
            version()  # This will use print from CustomLogger
            output = fake_out.getvalue()
            assert output == f"Custom logger: {__version__}\n"
