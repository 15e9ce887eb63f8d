from __future__ import annotations

from unittest.mock import Mock, patch

from backoffice.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """Test that is_tty_enabled returns sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        """A tqdm bar counting rows is created on a TTY."""
        with patch('backoffice.services.progress.is_tty_enabled', return_value=True), \
             patch('backoffice.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Importing products")

            assert tracker.total_rows == 5
            assert tracker.processed == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Importing products",
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        """No bar outside a TTY; counters still move."""
        with patch('backoffice.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(3)
            tracker.update(2)

            assert tracker.enabled is False
            assert tracker.pbar is None
            assert tracker.processed == 2

    def test_update_is_monotonic_and_bounded(self):
        mock_pbar = Mock()
        with patch('backoffice.services.progress.is_tty_enabled', return_value=True), \
             patch('backoffice.services.progress.tqdm', return_value=mock_pbar):

            tracker = ProgressTracker(4)
            tracker.update(2)
            tracker.update(1)  # backwards, ignored
            tracker.update(9)  # clamped to total

            assert tracker.processed == 4
            assert [c.args[0] for c in mock_pbar.update.call_args_list] == [2, 2]

    def test_update_with_new_total(self):
        mock_pbar = Mock()
        with patch('backoffice.services.progress.is_tty_enabled', return_value=True), \
             patch('backoffice.services.progress.tqdm', return_value=mock_pbar):

            tracker = ProgressTracker(2)
            tracker.update(3, total=5)

            assert tracker.total_rows == 5
            assert mock_pbar.total == 5
            mock_pbar.refresh.assert_called_once()

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('backoffice.services.progress.is_tty_enabled', return_value=True), \
             patch('backoffice.services.progress.tqdm', return_value=mock_pbar):

            with ProgressTracker(1) as tracker:
                tracker.set_postfix(valid=1, errors=0)

            mock_pbar.set_postfix.assert_called_once_with(valid=1, errors=0)
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None

    def test_fraction(self):
        with patch('backoffice.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(4)
            tracker.update(1)
            assert tracker.fraction == 0.25
            assert ProgressTracker(0).fraction == 1.0
