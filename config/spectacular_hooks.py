"""
Custom hooks for drf-spectacular to customize OpenAPI schema.
"""

TOKEN_AUTH_SCHEME = {
    'type': 'apiKey',
    'in': 'header',
    'name': 'Authorization',
    'description': 'Token-based authentication. Format: `Token <your-token>`'
}


def keep_token_auth_only(result, generator, request, public):
    """Drop the session/basic schemes DRF auto-detects; clients of this API use tokens."""
    components = result.get('components', {})
    if 'securitySchemes' in components:
        components['securitySchemes'] = {'TokenAuth': TOKEN_AUTH_SCHEME}

    for path_item in result.get('paths', {}).values():
        for operation in path_item.values():
            if isinstance(operation, dict) and 'security' in operation:
                operation['security'] = [{'TokenAuth': []}]
    return result
