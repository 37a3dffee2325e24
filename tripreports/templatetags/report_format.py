from django import template

from .. import utils

register = template.Library()


@register.filter
def money(value):
    return utils.format_number(value)


@register.filter
def km(value):
    return utils.format_distance(value)


@register.filter
def thai_date(value):
    return utils.thai_date(value)


@register.filter
def travel_period(record):
    return utils.travel_period(record.trip_date, record.return_date)


@register.filter
def vehicle_type(value):
    return utils.vehicle_type_label(value) or "-"


@register.filter
def driver_type(value):
    return utils.driver_type_label(value)
