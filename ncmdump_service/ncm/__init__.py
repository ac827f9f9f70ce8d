"""NetEase Cloud Music (``.ncm``) adapters: enumeration, decryption, dumping."""
