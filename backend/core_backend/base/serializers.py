from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer that provides common functionality.

    Meta may declare select_related_fields / prefetch_related_fields; the base
    viewsets read them to optimize list and detail queries.
    """

    class Meta:
        select_related_fields = []
        prefetch_related_fields = []


class FieldsetMixin:
    """
    Mixin that enables dynamic field control via context:
    - Fieldsets (view modes: list, detail, kitchen)
    - Dynamic field filtering (?fields=id,status)

    Usage:
        class DeliverySerializer(FieldsetMixin, BaseModelSerializer):
            class Meta:
                model = Delivery
                fields = '__all__'
                fieldsets = {
                    'list': ['id', 'date', 'scheduled_time', 'status'],
                    'kitchen': ['id', 'scheduled_time', 'status', 'items'],
                }
                required_fields = {'id'}
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_fieldset_filtering()
        self._apply_dynamic_field_filtering()

    def _required_fields(self):
        return getattr(self.Meta, 'required_fields', {'id'})

    def _apply_fieldset_filtering(self):
        view_mode = self.context.get('view_mode')
        fieldsets = getattr(self.Meta, 'fieldsets', {})

        if view_mode and view_mode in fieldsets:
            fieldset_value = fieldsets[view_mode]
            if fieldset_value == '__all__':
                return

            allowed = set(fieldset_value) | self._required_fields()
            for field_name in set(self.fields.keys()) - allowed:
                self.fields.pop(field_name)

    def _apply_dynamic_field_filtering(self):
        requested = self.context.get('requested_fields')
        if requested:
            allowed = set(requested) | self._required_fields()
            for field_name in set(self.fields.keys()) - allowed:
                self.fields.pop(field_name)
