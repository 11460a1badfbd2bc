"""ExclusionSet tests"""

from unittest.mock import Mock

from rotalock.rotation.exclusion import ExclusionSet


class TestExclude:
    """Excluding panels"""

    def test_exclude_removes_from_queue_and_locks(self, host):
        exclusions = ExclusionSet(host)
        a, b, c = host.list_panels()
        queue = [a, b, c]

        assert exclusions.set_excluded(b, True, queue) is True

        assert queue == [a, c]
        assert b in exclusions
        assert host.is_locked(b)

    def test_exclude_twice_is_noop(self, host):
        exclusions = ExclusionSet(host)
        b = host.list_panels()[1]
        exclusions.set_excluded(b, True)

        assert exclusions.set_excluded(b, True) is False
        assert len(exclusions) == 1

    def test_none_panel_ignored(self, host):
        exclusions = ExclusionSet(host)
        assert exclusions.set_excluded(None, True) is False
        assert exclusions.set_excluded(None, False) is False
        assert not exclusions.is_excluded(None)

    def test_order_preserved(self, host):
        exclusions = ExclusionSet(host)
        a, b, c = host.list_panels()
        exclusions.set_excluded(c, True)
        exclusions.set_excluded(a, True)

        assert exclusions.panels() == [c, a]


class TestIncludeBack:
    """Including panels back"""

    def test_include_back_runs_callback(self, host):
        exclusions = ExclusionSet(host)
        b = host.list_panels()[1]
        exclusions.set_excluded(b, True)
        callback = Mock()

        assert exclusions.set_excluded(b, False, on_include_back=callback) is True

        callback.assert_called_once_with()
        assert not exclusions.is_excluded(b)

    def test_include_unknown_panel(self, host):
        exclusions = ExclusionSet(host)
        callback = Mock()

        assert exclusions.set_excluded(host.list_panels()[0], False, on_include_back=callback) is False
        callback.assert_not_called()


class TestPurge:
    """Dead reference cleanup"""

    def test_purge_dead(self, host):
        exclusions = ExclusionSet(host)
        a, b, c = host.list_panels()
        exclusions.set_excluded(a, True)
        exclusions.set_excluded(b, True)
        host.close(a)

        assert exclusions.purge_dead() == 1
        assert exclusions.panels() == [b]

    def test_clear(self, host):
        exclusions = ExclusionSet(host)
        exclusions.set_excluded(host.list_panels()[0], True)

        exclusions.clear()

        assert len(exclusions) == 0
