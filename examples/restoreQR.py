import Paperkey
import Paperkey.qr
import sys

public = open('public.gpg', 'rb').read()

# Codewords of a QR code holding the raw format
codewords = open('qr.bin', 'rb').read()
secrets = Paperkey.qr.decode_byte_mode(codewords)

sys.stdout.buffer.write(Paperkey.restore_secrets(public, secrets, Paperkey.DataType.RAW))
