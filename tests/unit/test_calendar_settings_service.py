"""Tests for business hours, breaks, closures, services and booking form configuration."""
from datetime import time

import pytest

from app.models.form_field import FormFieldType
from app.services.business.calendar_settings_service import CalendarSettingsService, parse_time
from app.services.scheduling.calendar_model import load_calendar_snapshot

from tests.helpers import MONDAY


class TestBusinesses:

    def test_slug_must_be_unique(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.create_business(db, name="Other", slug=business.slug)

    def test_lookup_by_slug(self, db, business):
        assert CalendarSettingsService.get_business_by_slug(db, "studio-nine").id == business.id


class TestHours:

    def test_open_day_uses_default_hours(self, db, business):
        hours = CalendarSettingsService.set_day_open(db, business.id, 6, True)
        assert hours.start_time == time(9, 0)
        assert hours.end_time == time(18, 0)

    def test_close_day_removes_rule(self, db, business):
        CalendarSettingsService.set_day_open(db, business.id, 1, False)
        calendar = load_calendar_snapshot(db, business.id)
        assert calendar.open_window(MONDAY) is None

    def test_set_hours_replaces_existing_rule(self, db, business):
        CalendarSettingsService.set_hours(db, business.id, 1, "10:00", "14:00")
        hours = [h for h in CalendarSettingsService.list_hours(db, business.id) if h.day_of_week == 1]
        assert len(hours) == 1
        assert hours[0].start_time == time(10, 0)

    def test_start_must_precede_end(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.set_hours(db, business.id, 1, "18:00", "09:00")

    def test_day_out_of_range(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.set_hours(db, business.id, 7, "09:00", "18:00")


class TestBreaks:

    def test_default_break(self, db, business):
        brk = CalendarSettingsService.add_break(db, business.id, 1)
        assert (brk.start_time, brk.end_time) == (time(13, 0), time(13, 30))

    def test_update_and_delete_break(self, db, business):
        brk = CalendarSettingsService.add_break(db, business.id, 1, "12:00", "12:30")
        updated = CalendarSettingsService.update_break(db, business.id, brk.id, end="13:00")
        assert updated.end_time == time(13, 0)

        assert CalendarSettingsService.delete_break(db, business.id, brk.id)
        assert not CalendarSettingsService.delete_break(db, business.id, brk.id)

    def test_breaks_reach_the_snapshot_merged(self, db, business):
        CalendarSettingsService.add_break(db, business.id, 1, "12:00", "13:00")
        CalendarSettingsService.add_break(db, business.id, 1, "12:30", "13:30")

        breaks = load_calendar_snapshot(db, business.id).breaks_on(MONDAY)
        assert len(breaks) == 1
        assert breaks[0].end.time() == time(13, 30)


class TestClosures:

    def test_default_reason(self, db, business):
        closure = CalendarSettingsService.add_closure(db, business.id, MONDAY, MONDAY)
        assert closure.reason == "Vacation"

    def test_end_before_start(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.add_closure(db, business.id, MONDAY, MONDAY.replace(day=1))


class TestServices:

    def test_zero_price_is_hidden(self, db, business):
        service = CalendarSettingsService.create_service(db, business.id, name="Consult", duration_minutes=15)
        assert service.price_hidden
        assert service.to_dict()["price"] is None

    def test_invalid_values(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.create_service(db, business.id, name="Bad", duration_minutes=0)
        with pytest.raises(ValueError):
            CalendarSettingsService.create_service(db, business.id, name="Bad", duration_minutes=30, price=-1)

    def test_inactive_service_is_not_bookable(self, db, business, service):
        CalendarSettingsService.update_service(db, service, is_active=False)
        assert CalendarSettingsService.get_service(db, business.id, service.id) is None
        assert CalendarSettingsService.get_service(db, business.id, service.id, active_only=False) is not None


class TestFormFields:

    def test_fields_are_listed_in_order(self, db, business):
        first = CalendarSettingsService.add_form_field(db, business.id, "Allergies")
        second = CalendarSettingsService.add_form_field(db, business.id, "Phone model", is_required=True)
        CalendarSettingsService.update_form_field(db, first, order_index=5)

        fields = CalendarSettingsService.list_form_fields(db, business.id)
        assert [f.id for f in fields] == [second.id, first.id]
        assert second.order_index == 2

    def test_select_needs_options(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.add_form_field(db, business.id, "Length", FormFieldType.SELECT)

        field = CalendarSettingsService.add_form_field(
            db, business.id, "Length", FormFieldType.SELECT, options=["short", " long ", ""]
        )
        assert field.options == ["short", "long"]

    def test_options_are_dropped_for_other_types(self, db, business):
        field = CalendarSettingsService.add_form_field(db, business.id, "Notes", options=["x"])
        assert field.options is None

    def test_changing_type_to_select_requires_options(self, db, business):
        field = CalendarSettingsService.add_form_field(db, business.id, "Length")
        with pytest.raises(ValueError):
            CalendarSettingsService.update_form_field(db, field, field_type=FormFieldType.SELECT)

        updated = CalendarSettingsService.update_form_field(
            db, field, field_type=FormFieldType.SELECT, options=["short", "long"]
        )
        assert updated.field_type == FormFieldType.SELECT

    def test_empty_label_and_unknown_attribute(self, db, business):
        with pytest.raises(ValueError):
            CalendarSettingsService.add_form_field(db, business.id, "  ")
        field = CalendarSettingsService.add_form_field(db, business.id, "Allergies")
        with pytest.raises(ValueError):
            CalendarSettingsService.update_form_field(db, field, business_id=None)

    def test_deactivate_and_delete(self, db, business):
        field = CalendarSettingsService.add_form_field(db, business.id, "Allergies")
        CalendarSettingsService.update_form_field(db, field, is_active=False)
        assert CalendarSettingsService.list_form_fields(db, business.id) == []
        assert len(CalendarSettingsService.list_form_fields(db, business.id, include_inactive=True)) == 1

        assert CalendarSettingsService.delete_form_field(db, business.id, field.id)
        assert not CalendarSettingsService.delete_form_field(db, business.id, field.id)


class TestParseTime:

    def test_accepts_seconds_suffix(self):
        assert parse_time("09:30:00") == time(9, 30)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_time("half past nine")
