from datetime import date

from django import forms

from .pipeline import THAI_MONTHS

FIELD_CLASS = "bg-[#1C2541] text-white p-2 rounded-md outline-none focus:ring-2 focus:ring-blue-400"


class ReportFilterForm(forms.Form):
    year = forms.IntegerField(
        min_value=2000, max_value=2100, required=False,
        widget=forms.NumberInput(attrs={"class": FIELD_CLASS}),
    )
    month = forms.TypedChoiceField(
        choices=[("", "ทั้งปี")] + [(i, name) for i, name in enumerate(THAI_MONTHS, start=1)],
        coerce=int, empty_value=None, required=False,
        widget=forms.Select(attrs={"class": FIELD_CLASS}),
    )
    driver = forms.CharField(
        required=False,
        widget=forms.Select(attrs={"class": FIELD_CLASS}),
    )
    vehicle = forms.CharField(
        required=False,
        widget=forms.Select(attrs={"class": FIELD_CLASS}),
    )

    def __init__(self, *args, drivers=(), vehicles=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["driver"].widget.choices = [("", "ทั้งหมด")] + [(d, d) for d in drivers]
        self.fields["vehicle"].widget.choices = [("", "ทั้งหมด")] + [
            (str(v.id), f"{v.license_plate} {v.display_name}".strip()) for v in vehicles
        ]

    def period(self):
        """(year, month) from valid input, defaulting to the current month."""
        today = date.today()
        if not self.is_valid():
            return today.year, today.month
        year = self.cleaned_data.get("year") or today.year
        month = self.cleaned_data.get("month")
        if month is None and "month" not in self.data:
            month = today.month
        return year, month

    def driver_name(self):
        if not self.is_valid():
            return None
        return self.cleaned_data.get("driver") or None

    def vehicle_id(self):
        """Selected vehicle id; anything that is not a whole number means all vehicles."""
        if not self.is_valid():
            return None
        value = (self.cleaned_data.get("vehicle") or "").strip()
        return int(value) if value.isdigit() else None
