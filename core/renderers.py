"""
Core — Response Renderer

Wraps all successful responses in the standard envelope:
  { "success": true, "data": ..., "meta": ... }

Paged payloads from the out-of-stock query service
({"items": [...], "page_index": n, "has_more_pages": b, ...}) have their
paging fields lifted into "meta".

@file core/renderers.py
"""

from rest_framework.renderers import JSONRenderer

PAGE_META_KEYS = ('page_index', 'page_size', 'has_more_pages', 'fetched_at')


class StandardJSONRenderer(JSONRenderer):
    """Wraps successful API responses in a consistent envelope."""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context.get('response') if renderer_context else None

        if response is not None and response.status_code >= 400:
            return super().render(data, accepted_media_type, renderer_context)

        if isinstance(data, dict) and 'success' in data:
            return super().render(data, accepted_media_type, renderer_context)

        if isinstance(data, dict) and 'items' in data and 'has_more_pages' in data:
            envelope = {
                'success': True,
                'data': data['items'],
                'meta': {key: data.get(key) for key in PAGE_META_KEYS},
            }
        else:
            envelope = {
                'success': True,
                'data': data,
            }

        return super().render(envelope, accepted_media_type, renderer_context)
