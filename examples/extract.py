import Paperkey
import sys

secret = open('secret.gpg', 'rb').read()

text = Paperkey.extract_secrets(secret, comment = 'Kept in the desk drawer')

sys.stdout.write(text.decode('utf-8'))
