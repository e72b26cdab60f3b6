from datetime import time

from src.hr_crm.hr_crm.attendance.factory import AttendanceStrategyFactory
from src.hr_crm.hr_crm.attendance.strategies.half_day_strategy import AfterCutoffStrategy, HalfDayStrategy
from src.hr_crm.hr_crm.attendance.strategies.late_strategy import LateStrategy
from src.hr_crm.hr_crm.attendance.strategies.on_time_strategy import OnTimeStrategy
from src.hr_crm.hr_crm.core.enums import AttendanceStatus


def test_factory_picks_on_time_before_late_window():
    assert isinstance(AttendanceStrategyFactory().for_login(time(9, 9, 59)), OnTimeStrategy)


def test_factory_late_window_is_inclusive_at_both_ends():
    factory = AttendanceStrategyFactory()
    assert isinstance(factory.for_login(time(9, 10)), LateStrategy)
    assert isinstance(factory.for_login(time(9, 30)), LateStrategy)
    assert isinstance(factory.for_login(time(9, 30, 1)), HalfDayStrategy)


def test_factory_after_cutoff():
    assert isinstance(AttendanceStrategyFactory().for_login(time(10, 0)), AfterCutoffStrategy)


def test_late_strategy_checkout_by_hours():
    strategy = LateStrategy()
    assert strategy.decide_checkout(in_time=time(9, 15), hours=9).status == AttendanceStatus.LATE
    assert strategy.decide_checkout(in_time=time(9, 15), hours=5).status == AttendanceStatus.HALFDAY
    assert strategy.decide_checkout(in_time=time(9, 15), hours=4.9).status == AttendanceStatus.ABSENT
