from django import forms

from .constants import (
    MAX_BOX_DESCRIPTION_LENGTH,
    MAX_BOX_NAME_LENGTH,
    MAX_LOCATION_DESCRIPTION_LENGTH,
    MAX_LOCATION_NAME_LENGTH,
    MAX_TAG_LENGTH,
    MAX_WORKSPACE_NAME_LENGTH,
)
from .models import Role


class JsonForm(forms.Form):
    """
    Form bound to a decoded JSON object.

    With ``partial=True`` (PATCH) only the keys present in the payload are
    validated and end up in ``cleaned_data``, so "absent" and "null" stay
    distinguishable.
    """

    def __init__(self, data=None, *args, partial=False, **kwargs):
        super().__init__(data, *args, **kwargs)
        if partial and data is not None:
            for name in list(self.fields):
                if name not in data:
                    del self.fields[name]
                else:
                    self.fields[name].required = False


class TagListField(forms.Field):
    default_error_messages = {
        "invalid": "Tags must be a list of strings.",
        "too_long": f"Tags must be at most {MAX_TAG_LENGTH} characters long.",
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)) or not all(isinstance(t, str) for t in value):
            raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
        return [t.strip() for t in value]

    def validate(self, value):
        super().validate(value)
        if any(len(t) > MAX_TAG_LENGTH for t in value):
            raise forms.ValidationError(self.error_messages["too_long"], code="too_long")


class WorkspaceForm(JsonForm):
    name = forms.CharField(max_length=MAX_WORKSPACE_NAME_LENGTH)


class MemberForm(JsonForm):
    email = forms.EmailField()
    role = forms.ChoiceField(choices=Role.choices, required=False)

    def clean_role(self):
        return self.cleaned_data.get("role") or Role.MEMBER


class MemberRoleForm(JsonForm):
    role = forms.ChoiceField(choices=Role.choices)


class LocationForm(JsonForm):
    name = forms.CharField(max_length=MAX_LOCATION_NAME_LENGTH)
    description = forms.CharField(max_length=MAX_LOCATION_DESCRIPTION_LENGTH, required=False)
    parent_id = forms.UUIDField(required=False)


class LocationUpdateForm(JsonForm):
    name = forms.CharField(max_length=MAX_LOCATION_NAME_LENGTH)
    description = forms.CharField(max_length=MAX_LOCATION_DESCRIPTION_LENGTH, required=False)


class LocationListForm(forms.Form):
    parent_id = forms.UUIDField(required=False)


class BoxForm(JsonForm):
    name = forms.CharField(max_length=MAX_BOX_NAME_LENGTH)
    description = forms.CharField(max_length=MAX_BOX_DESCRIPTION_LENGTH, required=False)
    tags = TagListField(required=False)
    location_id = forms.UUIDField(required=False)
    qr_code_id = forms.UUIDField(required=False)


class BoxDuplicateCheckForm(JsonForm):
    name = forms.CharField(max_length=MAX_BOX_NAME_LENGTH)
    exclude_box_id = forms.UUIDField(required=False)


class BoxSearchForm(forms.Form):
    q = forms.CharField(required=False)
    location_id = forms.UUIDField(required=False)
    is_assigned = forms.NullBooleanField(required=False)
    page = forms.IntegerField(required=False, min_value=1)
    per_page = forms.IntegerField(required=False)


class QrBatchForm(JsonForm):
    # Range is checked by the ledger so out-of-range requests get their own error code
    quantity = forms.IntegerField()


class QrCodeListForm(forms.Form):
    status = forms.CharField(required=False)
