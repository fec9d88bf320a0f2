import pytest

import keys

@pytest.fixture(scope = 'session')
def rsa_keyring():
    return keys.rsa_keyring()

@pytest.fixture(scope = 'session')
def ecc_keyring():
    return keys.ecc_keyring()

@pytest.fixture(scope = 'session', params = ['rsa', 'ecc'])
def keyring(request, rsa_keyring, ecc_keyring):
    return {'rsa': rsa_keyring, 'ecc': ecc_keyring}[request.param]
