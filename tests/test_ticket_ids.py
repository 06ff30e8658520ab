import hashlib
import re

from shared.utils.ticket_ids import TICKET_ID_NAMESPACE, derive_external_id

UUID_SHAPE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$')


def test_derive_is_deterministic():
    assert derive_external_id('12156635') == derive_external_id('12156635')


def test_derive_matches_known_digest():
    digest = hashlib.sha256(f'{TICKET_ID_NAMESPACE}12156635'.encode('utf-8')).hexdigest()
    expected = f'{digest[:8]}-{digest[8:12]}-{digest[12:16]}-{digest[16:20]}-{digest[20:32]}'

    assert derive_external_id('12156635') == expected


def test_derive_has_uuid_shape():
    for ticket_id in ['1', 'ABC-123', 'not found', '', 'åäö', 99999999999]:
        assert UUID_SHAPE.match(derive_external_id(ticket_id))


def test_numeric_and_string_ids_agree():
    assert derive_external_id(12156635) == derive_external_id('12156635')


def test_no_collisions_over_10000_ids():
    derived = {derive_external_id(str(n)) for n in range(10000)}

    assert len(derived) == 10000
