from xcsigninfo.config import Request
