class FieldsetQueryParamsMixin:
    """
    Parses standard query params and injects them into serializer context.

    Supported params:
    - ?view=list|detail|kitchen (selects fieldset)
    - ?fields=id,status (ad-hoc field filtering)
    """

    def get_serializer_context(self):
        context = super().get_serializer_context()

        view_mode = self.request.query_params.get('view', self._get_default_view_mode())
        fields_param = self.request.query_params.get('fields', '')
        requested_fields = [f.strip() for f in fields_param.split(',') if f.strip()]

        context.update({
            'view_mode': view_mode,
            'requested_fields': requested_fields or None,
        })
        return context

    def _get_default_view_mode(self):
        action = getattr(self, 'action', None)
        if action == 'list':
            return 'list'
        return 'detail'


class CustomerScopedQuerysetMixin:
    """
    Restrict querysets to the requesting customer's own rows.

    Staff roles (owner, admin, kitchen) see everything. The attribute path from
    the model to its owning user is given by ``customer_lookup``.
    """

    customer_lookup = 'customer'

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if getattr(user, 'is_staff_role', False):
            return queryset
        return queryset.filter(**{self.customer_lookup: user})
