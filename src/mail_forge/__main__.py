from mail_forge.cli.app import main

main()
