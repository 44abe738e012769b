import base64
import unittest

from boardsync.security import credentials_match, decode_basic_auth


def _header(raw: bytes, scheme: str = "Basic") -> str:
    return f"{scheme} {base64.b64encode(raw).decode('ascii')}"


class BasicAuthParsingTests(unittest.TestCase):
    def test_decode_valid_header(self):
        self.assertEqual(decode_basic_auth(_header(b"user:pa:ss")), ("user", "pa:ss"))

    def test_decode_rejects_other_schemes(self):
        self.assertIsNone(decode_basic_auth(_header(b"user:pass", scheme="Bearer")))

    def test_decode_rejects_invalid_base64(self):
        self.assertIsNone(decode_basic_auth("Basic !!!notbase64!!!"))

    def test_decode_requires_colon(self):
        self.assertIsNone(decode_basic_auth(_header(b"userpass")))

    def test_credentials_match(self):
        self.assertTrue(credentials_match(_header(b"admin:secret"), "admin", "secret"))
        self.assertFalse(credentials_match(_header(b"admin:wrong"), "admin", "secret"))
        self.assertFalse(credentials_match("", "admin", "secret"))


if __name__ == "__main__":
    unittest.main()
