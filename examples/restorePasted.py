import Paperkey
import Paperkey.sniff
import sys

public = open('public.gpg', 'rb').read()

# Text typed in or pasted from a scanner app: base16 lines, a hex dump or base64
secrets, input_type = Paperkey.sniff.prepare(sys.stdin.read())

sys.stdout.buffer.write(Paperkey.restore_secrets(public, secrets, input_type))
