"""Schema v1 - Initial database schema.

This version includes tables for:
- Indexed marketplace events
- Active listings derived from those events
"""

schema = {
    'version': 1,
    'tables': [
        {
            'name': 'marketplace_events',
            'columns': [
                {'name': 'tx_hash', 'type': 'TEXT', 'nullable': False},
                {'name': 'log_index', 'type': 'INT8', 'nullable': False},
                {'name': 'block_number', 'type': 'INT8', 'nullable': False},
                {'name': 'contract_address', 'type': 'TEXT', 'nullable': False},
                {'name': 'event_name', 'type': 'TEXT', 'nullable': False},
                {'name': 'nft_address', 'type': 'TEXT'},
                {'name': 'token_id', 'type': 'NUMERIC(78, 0)'},
                {'name': 'account', 'type': 'TEXT'},  # seller or buyer
                {'name': 'price', 'type': 'NUMERIC(78, 0)'},
                {'name': 'args', 'type': 'JSONB', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ],
            'primary_key': ['tx_hash', 'log_index'],
            'indexes': [
                {'name': 'idx_events_name', 'columns': ['event_name']},
                {'name': 'idx_events_token', 'columns': ['nft_address', 'token_id']},
                {'name': 'idx_events_account', 'columns': ['account']}
            ]
        },
        {
            'name': 'active_items',
            'columns': [
                {'name': 'nft_address', 'type': 'TEXT', 'nullable': False},
                {'name': 'token_id', 'type': 'NUMERIC(78, 0)', 'nullable': False},
                {'name': 'seller', 'type': 'TEXT', 'nullable': False},
                {'name': 'price', 'type': 'NUMERIC(78, 0)', 'nullable': False},
                {'name': 'block_number', 'type': 'INT8', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ],
            'primary_key': ['nft_address', 'token_id'],
            'indexes': [
                {'name': 'idx_active_items_seller', 'columns': ['seller']}
            ]
        }
    ],
    'triggers': [
        {
            'name': 'active_items_updated_at',
            'table': 'active_items',
            'timing': 'BEFORE',
            'event': 'UPDATE',
            'function_name': 'touch_updated_at',
            'function_body': '''
                BEGIN
                    NEW.updated_at = now();
                    RETURN NEW;
                END;
            '''
        }
    ]
}
