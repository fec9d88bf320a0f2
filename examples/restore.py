import Paperkey
import sys

public = open('public.gpg', 'rb').read()
secrets = open('secrets.txt', 'rb').read()

try:
	restored = Paperkey.restore_secrets(public, secrets)
except Paperkey.ChecksumMismatch as e:
	sys.stderr.write("%s\n" % e)
	sys.exit(1)

sys.stdout.buffer.write(restored)
